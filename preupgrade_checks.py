#!/usr/bin/env python3
"""
Fission Pre-Upgrade Checks.

Entry point run as a job before upgrading fission on a cluster.
"""

import sys
from fission_preupgrade.libs.main_app import main


if __name__ == "__main__":
    sys.exit(main())
