"""
Styling module: personas with their measurements and preferences,
wardrobes, wardrobe items, outfits and outfit items.
"""
