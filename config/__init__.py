"""Settings for cutlist intake runs.

Defaults are overlaid, in order, by the JSON files in the config directory
(``materials.json``, ``operations.json``, ``headers.json``), by ``CUTLIST_*``
environment variables and by command-line flags.

config.py holds the frozen settings dataclasses and ``ConfigLoader``;
service.py wraps them in ``ConfigurationService``, which also builds the
parse context, vocabulary, scorer and header fields for a run.
"""
