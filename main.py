import sys

from config import settings


def main():
    """
    StockLens entry point.
    Starts the local upload dashboard.
    """
    from ui.app import app

    print("StockLens - local stock data dashboard")
    print(f"Logs: {settings.LOG_DIR}")
    print(f"Upload limit: {settings.MAX_UPLOAD_MB}MB")

    app.run(host="127.0.0.1", port=5000, debug=False)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nStopped by user.")
        sys.exit(0)
