import json
import logging
import os

import boto3

from privatemail.aws import InboundReference, S3MessageStore, SesSender
from privatemail.config import ForwarderConfig
from privatemail.errors import ForwardingError
from privatemail.forwarder import Forwarder, State

logger = logging.getLogger()
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO"))


def lambda_handler(event, context):
    logger.debug(json.dumps(dict(input_event=event)))

    try:
        config = ForwarderConfig.from_env()
        reference = InboundReference.from_event(event, config)
    except ForwardingError as e:
        logger.error(json.dumps(dict(stage=e.stage, reason=e.reason)))
        return {
            "statusCode": 422,
            "body": json.dumps(dict(state=State.FAILED.value, stage=e.stage, reason=e.reason)),
        }

    s3 = boto3.client("s3")
    ses = boto3.client("ses", region_name=config.region)
    forwarder = Forwarder(config, S3MessageStore(s3), SesSender(ses))

    # Forward the email
    outcome = forwarder.forward(reference)

    if outcome.state is State.FAILED and outcome.retryable:
        # Let the trigger retry the whole invocation
        raise outcome.error

    return {
        "statusCode": 200 if outcome.ok else 422,
        "body": json.dumps(outcome.as_dict()),
    }
