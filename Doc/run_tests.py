#!/usr/bin/env python
"""
Test runner script for the full suite
Usage: python Doc/run_tests.py [app_label ...]
"""
import os
import sys

import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'soundstock.core',
    'soundstock.equipment',
    'soundstock.events',
    'soundstock.inventory',
    'soundstock.notifications',
    'soundstock.assistant',
    'soundstock.reports',
]

if __name__ == "__main__":
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'soundstock.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests(sys.argv[1:] or APPS)
    sys.exit(bool(failures))
