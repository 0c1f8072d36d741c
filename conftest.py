"""
Root conftest: its presence puts the project root on ``sys.path`` so the
test-suite imports ``pulse_monitor`` without an editable install.
"""
