# Sequence diagram (Mermaid subset) module
from .parser import (
    analyze_diagram,
    format_diagram,
    generate_diagram,
    parse_diagram,
    validate_diagram,
)

__all__ = ['analyze_diagram', 'format_diagram', 'generate_diagram', 'parse_diagram', 'validate_diagram']
