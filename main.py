import sys

from vehicle_route.cli import main

if __name__ == "__main__":
    sys.exit(main())
