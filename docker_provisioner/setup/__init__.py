# -*- coding: utf-8 -*-
"""Settings models, configuration loading and step execution."""
