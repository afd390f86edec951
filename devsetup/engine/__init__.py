"""
Step-based provisioning engine.

Import from the submodules directly, e.g. ``devsetup.engine.runner``.
"""
