"""
Catalogue module: vendors, products, variants, inventory and media assets.
"""
