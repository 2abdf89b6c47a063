from translation_reviewer.cli import app

app(prog_name="translation-reviewer")
