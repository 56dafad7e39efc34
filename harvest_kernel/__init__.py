"""
Harvest Kernel

Persistence mapping, domain value objects, read selectors and the typed
error hierarchy for the harvest financial analytics engine:
- Crop-zone, harvest, sale, activity and reservation records
- Explicit consumable / durable-tool cost model
- Point-in-time financial snapshots per harvest
- Structured JSON logging
"""

__version__ = "0.1.0"
