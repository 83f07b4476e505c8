# ==============================================
# TrafficLens: Traffic Dataset Analytics Engine
# ==============================================
#
# Package Structure (5 Topics + Orchestrator):
#
# trafficlens/
# ├── ingestion/        # Topic 1: Parse CSV/TSV/JSON into raw records
# ├── analysis/         # Topic 2: Infer the semantic role of each column
# ├── normalization/    # Topic 3: Coerce raw records into canonical rows
# ├── aggregation/      # Topic 4: Fold rows by route and by time bucket
# ├── prediction/       # Topic 5: Classify congestion, rank routes
# ├── persistence/      # Export snapshots to / from JSON files
# ├── config.py         # Configuration management
# ├── errors.py         # Ingestion error hierarchy
# ├── session.py        # Session-scoped orchestrator
# ├── pipeline.py       # File / URL loading wrapper
# └── cli.py            # Command line entry point
#
# ==============================================

__version__ = "0.1.0"
