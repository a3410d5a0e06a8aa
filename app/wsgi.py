from app.smartstyle import create_app

app = create_app()
