"""Mount session orchestration: classification, attachment, mounting and RAID assembly."""
