"""CREATE SEQUENCE generation."""

from structure_sql.generators.base import Generator
from structure_sql.schema.models import Sequence


class SequenceGenerator(Generator):
    """Renders a sequence, listing only options that differ from defaults."""

    def generate(self, sequence: Sequence) -> str:
        parts = [f"CREATE SEQUENCE IF NOT EXISTS {self.qualified(sequence.name, sequence.schema_name)}"]

        if sequence.start_value is not None:
            parts.append(f"START WITH {sequence.start_value}")
        if sequence.increment != 1:
            parts.append(f"INCREMENT BY {sequence.increment}")
        if sequence.min_value is not None:
            parts.append(f"MINVALUE {sequence.min_value}")
        if sequence.max_value is not None:
            parts.append(f"MAXVALUE {sequence.max_value}")
        if sequence.cache_size > 1:
            parts.append(f"CACHE {sequence.cache_size}")
        if sequence.cycle:
            parts.append("CYCLE")

        return "\n  ".join(parts) + ";"
