"""Adapters for the external tools a mount session drives.

One module per collaborator (ewfmount, losetup, parted/file/lsblk/kpartx,
mount, mdadm), each turning tool output into typed results, plus the
resource registry that tears everything down again.
"""
