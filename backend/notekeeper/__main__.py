"""Run the API server: python -m notekeeper."""

from notekeeper.main import run

if __name__ == "__main__":
    run()
