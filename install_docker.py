#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Entry point for the Docker Engine provisioner.

Usage: sudo ./install_docker.py [-d] [-r /srv/docker] [-u USER ...]
"""

import sys

from docker_provisioner.main import main

if __name__ == "__main__":
    sys.exit(main())
