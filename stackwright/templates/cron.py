"""Entry point bodies for timer-triggered functions"""

REMOTE = '''
from aws_lambda_powertools.utilities.data_classes import EventBridgeEvent


def handler(event, context):
    scheduled = EventBridgeEvent(event)

    try:
        $function_symbol(scheduled.raw_event, SECRETS, QUEUES)
    except Exception:
        logger.exception("Error occurred while running scheduled job")
        raise
'''

LOCAL = '''
from datetime import datetime, timezone


def main():
    event = {
        "id": "local",
        "detail-type": "Scheduled Event",
        "source": "aws.events",
        "time": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "detail": json.loads(read_payload() or "{}"),
    }

    print("Running scheduled job", file=sys.stderr)
    $function_symbol(event, load_secrets(), load_queues())
    return 0


if __name__ == "__main__":
    sys.exit(main())
'''
