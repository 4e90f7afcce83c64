#!/usr/bin/env python3
import sys

from dotmatrix_lab.tui.app import DotMatrixApp

if __name__ == "__main__":
    app = DotMatrixApp(sys.argv[1] if len(sys.argv) > 1 else None)
    app.run()
