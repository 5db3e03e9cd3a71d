"""
SaveYourGoblin: LLM-assisted content generation for tabletop RPG game masters.

The ``saveyourgoblin.main`` module serves the HTTP API; ``saveyourgoblin.client``
drives the generation and section-regeneration workflow against it.
"""

__version__ = "0.1.0"
