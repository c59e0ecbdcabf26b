"""S3 and SES collaborators of the forwarder."""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote_plus

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from privatemail.errors import FetchFailure, InvalidEvent, SendFailure

logger = logging.getLogger(__name__)

_NOT_FOUND = ("NoSuchKey", "NoSuchBucket", "404", "NotFound")


@dataclass(frozen=True)
class InboundReference:
    """Where SES stored one inbound message."""

    bucket: str
    key: str
    message_id: Optional[str] = None

    def __str__(self):
        return "s3://%s/%s" % (self.bucket, self.key)

    @classmethod
    def from_event(cls, event, config):
        """Build a reference from an SES receipt event or an S3 notification."""
        try:
            record = event["Records"][0]
        except (KeyError, IndexError, TypeError):
            raise InvalidEvent("event has no Records")

        if "ses" in record:
            try:
                message_id = record["ses"]["mail"]["messageId"]
            except (KeyError, TypeError):
                raise InvalidEvent("SES record has no mail.messageId")
            if not config.bucket_name:
                raise InvalidEvent("BUCKET_NAME is required for SES receipt events")
            return cls(config.bucket_name, config.key_prefix + message_id, message_id)

        if "s3" in record:
            try:
                bucket = record["s3"]["bucket"]["name"]
                key = unquote_plus(record["s3"]["object"]["key"])
            except (KeyError, TypeError):
                raise InvalidEvent("S3 record has no bucket name or object key")
            return cls(bucket, key, key.rsplit("/", 1)[-1])

        raise InvalidEvent("unsupported event source %r" % record.get("eventSource"))


class S3MessageStore:
    def __init__(self, client=None):
        self.client = client or boto3.client("s3")

    def fetch(self, reference) -> bytes:
        try:
            response = self.client.get_object(Bucket=reference.bucket, Key=reference.key)
            return response["Body"].read()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in _NOT_FOUND:
                raise FetchFailure("%s not found" % reference, reference, not_found=True)
            raise FetchFailure("could not read %s: %s" % (reference, code or e), reference)
        except BotoCoreError as e:
            raise FetchFailure("could not read %s: %s" % (reference, e), reference)


class SesSender:
    def __init__(self, client=None, region=None):
        self.client = client or boto3.client("ses", region_name=region)

    def send(self, outbound) -> str:
        try:
            response = self.client.send_raw_email(
                Source=outbound.source,
                Destinations=list(outbound.destinations),
                RawMessage={"Data": outbound.raw},
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            raise SendFailure("SES rejected the message: %s" % (code or e))
        except BotoCoreError as e:
            raise SendFailure("SES request failed: %s" % e)
        logger.debug("SendRawEmail response: %s", response)
        return response["MessageId"]
