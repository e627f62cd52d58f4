"""Entry point for the microwave keypad controller CLI."""

from microwave_link.main import main


if __name__ == "__main__":
    raise SystemExit(main())
