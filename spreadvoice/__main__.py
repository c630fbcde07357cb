from spreadvoice.cli.main import app


app()
