# -*- coding: utf-8 -*-
"""Shared helpers for running commands and touching the host system."""
