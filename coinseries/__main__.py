from coinseries.cli import app

app(prog_name="coinseries")
