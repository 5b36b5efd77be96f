"""DynamoDB access for the QTune single table.

Items are addressed by a composite key: ``PK`` names the owner
(``USER#<id>``, ``USAGE#<id>``) and ``SK`` names the record.
"""

from datetime import UTC, datetime
from typing import Any

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

logger = Logger(child=True)


class DynamoDBClient:
    """Item-level reads and writes against one table."""

    def __init__(self, table_name: str) -> None:
        self.table_name = table_name
        self.table = boto3.resource("dynamodb").Table(table_name)

    def put_item(self, pk: str, sk: str, data: dict[str, Any]) -> dict[str, Any]:
        """Store a record, overwriting any previous version.

        ``updated_at`` is stamped on every write.

        Args:
            pk: Owner key
            sk: Record key
            data: Record attributes

        Returns:
            The stored item, keys included
        """
        item = {**data, "PK": pk, "SK": sk, "updated_at": datetime.now(UTC).isoformat()}

        try:
            self.table.put_item(Item=item)
        except ClientError as e:
            logger.error(
                "DynamoDB write failed",
                extra={"table": self.table_name, "pk": pk, "sk": sk, "error": str(e)},
            )
            raise

        logger.debug("Record stored", extra={"pk": pk, "sk": sk})
        return item

    def get_item(self, pk: str, sk: str) -> dict[str, Any] | None:
        """Fetch one record, or None if it was never written."""
        try:
            return self.table.get_item(Key={"PK": pk, "SK": sk}).get("Item")
        except ClientError as e:
            logger.error(
                "DynamoDB read failed",
                extra={"table": self.table_name, "pk": pk, "sk": sk, "error": str(e)},
            )
            raise

    def update_item(
        self,
        pk: str,
        sk: str,
        update_expression: str,
        values: dict[str, Any],
        condition: str | None = None,
    ) -> dict[str, Any]:
        """Apply an update expression in place.

        ``updated_at`` is stamped on every update; the expression can refer
        to it as ``:updated_at``.

        Args:
            pk: Owner key
            sk: Record key
            update_expression: DynamoDB update expression
            values: Expression attribute values
            condition: Optional condition expression

        Returns:
            The item after the update

        Raises:
            ClientError: Including ConditionalCheckFailedException, which is
                left to the caller
        """
        kwargs: dict[str, Any] = {
            "Key": {"PK": pk, "SK": sk},
            "UpdateExpression": update_expression,
            "ExpressionAttributeValues": {
                **values,
                ":updated_at": datetime.now(UTC).isoformat(),
            },
            "ReturnValues": "ALL_NEW",
        }
        if condition:
            kwargs["ConditionExpression"] = condition

        try:
            response = self.table.update_item(**kwargs)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ConditionalCheckFailedException":
                logger.error(
                    "DynamoDB update failed",
                    extra={"table": self.table_name, "pk": pk, "sk": sk, "error": str(e)},
                )
            raise

        return response["Attributes"]

    def delete_item(self, pk: str, sk: str) -> bool:
        """Remove one record.

        Returns:
            False if there was nothing to remove
        """
        try:
            self.table.delete_item(
                Key={"PK": pk, "SK": sk},
                ConditionExpression="attribute_exists(PK)",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            logger.error(
                "DynamoDB delete failed",
                extra={"table": self.table_name, "pk": pk, "sk": sk, "error": str(e)},
            )
            raise

        logger.info("Record removed", extra={"pk": pk, "sk": sk})
        return True
