"""Function and procedure generation."""

import re

from structure_sql.generators.base import Generator, terminate
from structure_sql.schema.models import Function

_DEFINER = re.compile(r"^CREATE\s+DEFINER\s*=\s*\S+\s+", re.IGNORECASE)


def strip_definer(statement: str) -> str:
    """Drop a MySQL ``DEFINER=`user`@`host``` clause so the dump is portable."""
    return _DEFINER.sub("CREATE ", statement.strip())


class FunctionGenerator(Generator):
    """Normalizes a complete function definition. The body is left untouched."""

    def generate(self, function: Function) -> str:
        return terminate(strip_definer(function.definition))
