import sys

from vehicle_route.cli import main

sys.exit(main())
