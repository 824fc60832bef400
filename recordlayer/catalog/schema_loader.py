"""
Schema loading from JSON files.
"""
import json
import logging
from pathlib import Path
from typing import Union

from .schema import Schema
from ..core.exceptions import DbException

logger = logging.getLogger(__name__)


class SchemaLoader:
    """
    Loads a Schema from a JSON document of the form::

        {
          "record_types": [
            {
              "name": "Order",
              "primary_key": ["order_id"],
              "indexes": [
                {"name": "amount_by_region", "type": "sum",
                 "expression": ["region", "amount"]},
                {"name": "embedding", "type": "vector", "expression": "embedding",
                 "options": {"dimensions": 3, "metric": "l2"}}
              ]
            }
          ]
        }
    """

    def load_schema_file(self, schema_file: Union[str, Path]) -> Schema:
        """
        Raises:
            DbException: If the file is missing, is not valid JSON, or
                describes an invalid schema
        """
        schema_path = Path(schema_file)
        if not schema_path.exists():
            raise DbException(f"Schema file not found: {schema_file}")

        with open(schema_path, 'r') as f:
            try:
                schema_data = json.load(f)
            except json.JSONDecodeError as e:
                raise DbException(f"Invalid JSON in schema file {schema_file}: {e}")

        schema = self.load_schema_dict(schema_data)
        logger.info("Loaded schema from %s with %d record types",
                    schema_path, len(schema.get_record_types()))
        return schema

    def load_schema_dict(self, schema_data) -> Schema:
        if not isinstance(schema_data, dict):
            raise DbException("Schema document must be a JSON object")
        return Schema.from_dict(schema_data)

    def save_schema_file(self, schema: Schema, schema_file: Union[str, Path]) -> None:
        with open(schema_file, 'w') as f:
            json.dump(schema.to_dict(), f, indent=2)
