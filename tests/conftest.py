# tests/conftest.py
import os

# ask_sdk_dynamodb builds a default boto3 resource at import time, which
# needs a region even though no test talks to AWS.
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_REGION", "us-east-1")
