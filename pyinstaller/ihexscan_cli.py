"""
Run PyInstaller against this script file to build a standalone executable.
Make sure that ihexscan is installed into the Python environment before.
"""
from ihexscan.__main__ import main as _main

_main('__main__')
