"""CREATE TYPE / CREATE DOMAIN generation."""

from structure_sql.generators.base import Generator, quote_literal
from structure_sql.schema.models import CustomType


class TypeGenerator(Generator):
    """Renders enum, composite and domain types.

    Unknown kinds render as None; callers drop them.

    Example:
        >>> TypeGenerator().generate(CustomType(name="mood", kind="enum", values=["sad", "happy"]))
        "CREATE TYPE mood AS ENUM ('sad', 'happy');"
    """

    def generate(self, custom_type: CustomType) -> str | None:
        name = self.qualified(custom_type.name, custom_type.schema_name)

        if custom_type.kind == "enum":
            values = ", ".join(quote_literal(value) for value in custom_type.values)
            return f"CREATE TYPE {name} AS ENUM ({values});"

        if custom_type.kind == "composite":
            attributes = ", ".join(
                f"{self.quote(attribute.name)} {attribute.type}" for attribute in custom_type.attributes
            )
            return f"CREATE TYPE {name} AS ({attributes});"

        if custom_type.kind == "domain":
            parts = [f"CREATE DOMAIN {name} AS {custom_type.base_type}"]
            if custom_type.constraint:
                parts.append(custom_type.constraint)
            return " ".join(parts) + ";"

        return None
