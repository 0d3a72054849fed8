"""Domain layer.

- **hierarchy**: channels, activities, branches and registers
- **ledger**: per-register consecutive counters for each document type
- **catalog**: reference catalog plus tenant overrides, with override-wins
  resolution
- **access**: membership-backed access guard
"""
