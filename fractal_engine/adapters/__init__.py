# Qt adapters need the optional PySide6 dependency: pip install fractal-engine[qt]
