"""Entry point bodies for request-handler functions"""

REMOTE = '''
from aws_lambda_powertools.utilities.data_classes import LambdaFunctionUrlEvent


def to_request(event):
    return {
        "method": event.http_method,
        "path": event.raw_path,
        "query": event.query_string_parameters or {},
        "headers": event.headers or {},
        "body": event.decoded_body or "",
    }


def handler(event, context):
    request = to_request(LambdaFunctionUrlEvent(event))

    try:
        result = $function_symbol(request, SECRETS, QUEUES)
    except Exception:
        logger.exception("Error occurred while handling request")
        raise

    return to_response(result)
'''

LOCAL = '''
DEFAULT_URL_PATH = $url_path


def main():
    payload = read_payload()
    headers = json.loads(os.environ.get(INVOKE_HEADERS_ENV) or "{}")
    request = {
        "method": "POST" if payload else "GET",
        "path": os.environ.get(INVOKE_URL_PATH_ENV) or DEFAULT_URL_PATH,
        "query": {},
        "headers": headers,
        "body": payload,
    }

    print("Serving requests", file=sys.stderr)
    response = to_response($function_symbol(request, load_secrets(), load_queues()))
    print(json.dumps(response, indent=2))
    return 0 if response.get("statusCode", 200) < 500 else 1


if __name__ == "__main__":
    sys.exit(main())
'''
