"""
The `packaging` sub-package covers the local side of a box build.

This includes:
- Orchestrating the build by invoking packer and recording the resulting metadata file.
- Reading metadata files back for the upload step.
"""
