"""Infrastructure layer — source files, subprocesses, container engines.

This layer depends on stdlib and the domain enums/models it reports in.
It must never import from services, commands, or output.
"""
