"""boto3 based S3 provisioning."""
