"""Entry point bodies for queue-consumer functions

A worker receives a list of records and returns the ids of the
records it failed to process; those are reported back as partial
batch failures so only they are redelivered.
"""

REMOTE = '''
from aws_lambda_powertools.utilities.data_classes import SQSEvent


def handler(event, context):
    batch = SQSEvent(event)
    records = [{"id": record.message_id, "body": record.body} for record in batch.records]

    try:
        failed = $function_symbol(records, SECRETS, QUEUES) or []
    except Exception:
        logger.exception("Error occurred while processing batch")
        failed = [record["id"] for record in records]

    return {"batchItemFailures": [{"itemIdentifier": item} for item in failed]}
'''

LOCAL = '''

def main():
    records = [{"id": "local-0", "body": read_payload()}]

    print("Processing batch", file=sys.stderr)
    failed = $function_symbol(records, load_secrets(), load_queues()) or []
    print(json.dumps({"batchItemFailures": [{"itemIdentifier": item} for item in failed]}, indent=2))
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
'''
