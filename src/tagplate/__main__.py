from tagplate.cli import app

app(prog_name="tagplate")
