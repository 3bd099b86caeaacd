"""Files a new project starts with

The sample module holds one function of the chosen role.
"""

PROJECT_CONFIG = '''\
name: $name

# Key-value tables shared by every function
# kvdb:
#   - sessions

# Variables set on every deployed function
# environment:
#   STAGE: dev
'''

PYPROJECT = '''\
[project]
name = "$name"
version = "0.1.0"
requires-python = ">=3.9"
dependencies = ["stackwright"]
'''

ENDPOINT = '''\
from stackwright import endpoint


@endpoint(url_path="/hello")
def hello(event, secrets, queues):
    return {"message": "Hello from $name"}
'''

WORKER = '''\
from stackwright import worker


@worker(queue_alias="jobs", concurrency=2)
def process(records, secrets, queues):
    failed = []
    for record in records:
        if not record["body"]:
            failed.append(record["id"])
    return failed
'''

CRON = '''\
from stackwright import cron


@cron(schedule="rate(1 hour)")
def tick(event, secrets, queues):
    print("Hourly run of $name")
'''
