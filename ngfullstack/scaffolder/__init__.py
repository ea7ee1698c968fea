"""ngfullstack scaffolder -- the collaborators that write files.

Quick usage::

    from ngfullstack.scaffolder import ProjectGenerator, TemplateRenderer

    generator = ProjectGenerator(TemplateRenderer())
    await generator.generate("/tmp/output", options.templates)
"""

from ngfullstack.scaffolder.generator import (
    ComponentGenerator,
    EndpointGenerator,
    ProjectGenerator,
    insert_below_needle,
)
from ngfullstack.scaffolder.templates import TemplateRenderer

__all__ = [
    "ComponentGenerator",
    "EndpointGenerator",
    "ProjectGenerator",
    "TemplateRenderer",
    "insert_below_needle",
]
