"""Run configuration for fusioncheck"""
import argparse
from dataclasses import dataclass
from typing import Optional

from fusioncheck.error_handling import ConfigurationError
from fusioncheck.rules import DEFAULT_CATALOG

VERBOSE_EXAMPLE_LIMIT = 50
MISS_EXAMPLE_LIMIT = 3
TOP_FUNCTIONS = 20
OUTPUT_FORMATS = ('markdown', 'json')


@dataclass(frozen=True)
class AnalysisConfig:
    """Options for one parse+analyze+summarize run"""
    function_filter: Optional[str] = None
    verbose: bool = False
    catalog_name: str = DEFAULT_CATALOG
    example_limit: Optional[int] = None     # None: derived from verbose
    miss_example_limit: int = MISS_EXAMPLE_LIMIT
    top_functions: int = TOP_FUNCTIONS
    workers: int = 1
    output_format: str = 'markdown'

    def __post_init__(self):
        if self.example_limit is None:
            object.__setattr__(
                self, 'example_limit', VERBOSE_EXAMPLE_LIMIT if self.verbose else 0
            )
        for name in ('example_limit', 'miss_example_limit', 'top_functions'):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative")
        if self.workers < 1:
            raise ConfigurationError("workers must be at least 1")
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigurationError(
                f"Unknown output format: {self.output_format}",
                suggestion=f"Choose one of: {', '.join(OUTPUT_FORMATS)}"
            )

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> 'AnalysisConfig':
        """Build a config from parsed CLI arguments"""
        return cls(
            function_filter=getattr(args, 'function', None),
            verbose=bool(getattr(args, 'verbose', False)),
            catalog_name=getattr(args, 'catalog', None) or DEFAULT_CATALOG,
            workers=getattr(args, 'workers', 1),
            output_format=getattr(args, 'format', None) or 'markdown',
        )
