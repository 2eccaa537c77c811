import os
from typing import Optional

import boto3
from ask_sdk_dynamodb.adapter import DynamoDbAdapter

from utils.logger import get_logger

logger = get_logger("onesignal.persistence")


def build_persistence_adapter() -> Optional[DynamoDbAdapter]:
    """
    DynamoDB persistence for skill attributes, one item per Alexa user id.

    ATTRIBUTES_TABLE names an existing table; without it the skill runs
    with session attributes only.
    """
    table_name = os.getenv("ATTRIBUTES_TABLE")
    if not table_name:
        return None

    logger.info("persistence.dynamodb", extra={"table": table_name})
    return DynamoDbAdapter(
        table_name=table_name,
        partition_key_name="id",
        attribute_name="attributes",
        create_table=False,
        dynamodb_resource=boto3.resource("dynamodb", region_name=os.getenv("AWS_REGION", "us-east-1")),
    )
