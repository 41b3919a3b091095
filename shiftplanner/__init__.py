"""Weekly shift scheduling engine for teams.

Modules:
- config: load and validate configuration (YAML or JSON)
- domain: SQLAlchemy models, enums and repositories (constraint store, roster)
- services.slots: expand shift templates into the week's slots
- services.directives: typed manager-approved conversation constraints
- services.scoring: candidate scoring and ranking per slot
- services.reasoning: assignment justifications and schedule warnings
- engine.solver: greedy most-constrained-slot-first solver
- engine.service: generate / get_warnings / move / publish / swap transitions
- io: CSV import and export
- cli: command-line interface entrypoints
"""

__version__ = "0.1.0"

__all__ = [
    "config",
    "domain",
    "services",
    "engine",
    "io",
    "cli",
    "errors",
]
