"""CREATE TRIGGER generation."""

from structure_sql.errors import GenerationError
from structure_sql.generators.base import Generator, terminate
from structure_sql.generators.function import strip_definer
from structure_sql.schema.models import Trigger


class TriggerGenerator(Generator):
    """Renders a trigger from its catalog definition.

    PostgreSQL triggers without a stored definition are rebuilt from their
    timing, event and function.
    """

    def generate(self, trigger: Trigger) -> str:
        if trigger.definition:
            return terminate(strip_definer(trigger.definition))

        if not trigger.function_name:
            raise GenerationError(
                f"Trigger {trigger.name} has neither a definition nor a function"
            )

        return (
            f"CREATE TRIGGER {self.quote(trigger.name)} {trigger.timing} {trigger.event} "
            f"ON {self.qualified(trigger.table_name, trigger.schema_name)} "
            f"FOR EACH ROW EXECUTE FUNCTION {trigger.function_name}();"
        )
