import sys

from monitor_scaler.cli import main


if __name__ == "__main__":
    sys.exit(main())
