import os
import sys

TESTS_DIR = os.path.dirname(__file__)
FIXTURE_PATH = os.path.join(TESTS_DIR, "data", "companies.json")

# point the company plugin at the fixture dataset before the server is imported
os.environ["DATA_PATH"] = FIXTURE_PATH
sys.path.insert(0, os.path.dirname(TESTS_DIR))
