"""
Code generators turning configurations into C source/header pairs.

Both generators report through `GenerationResult`. The timestamp embedded in
the generated files comes from an injectable clock, so that output can be
compared exactly.
"""
from dataclasses import dataclass
from datetime import datetime


@dataclass
class GenerationResult:
    header: str = ''
    source: str = ''
    header_file_name: str = ''
    source_file_name: str = ''
    success: bool = False
    error_message: str = ''

    @classmethod
    def failure(cls, message:str):
        """ A failed result never carries partial text. """
        return cls(success=False, error_message=message)


def timestamp(clock=datetime.now):
    return clock().strftime('%Y-%m-%d %H:%M:%S')
