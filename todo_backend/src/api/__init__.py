"""
Todo API package.

Marks 'src.api' as a Python package. The application factory lives in
``src.api.main`` (``create_app``), which uvicorn calls in factory mode.
"""
