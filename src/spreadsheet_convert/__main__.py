from spreadsheet_convert.cli import app

app()
