import os
import sys

# The tool is a set of top-level modules; make them importable without installing
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
