#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Render a batch of certificates from a template and a CSV file.
"""

import certificate_forge.cli


if __name__ == "__main__":
	certificate_forge.cli.main()
