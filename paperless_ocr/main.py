from paperless_ocr.cli import PROG_NAME, app


def main() -> None:
    """Entry point: parse flags -> load settings -> run the OCR pipeline -> exit."""
    app(prog_name=PROG_NAME)


if __name__ == "__main__":
    main()
