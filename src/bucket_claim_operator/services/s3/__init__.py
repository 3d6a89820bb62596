"""S3 provisioning interfaces."""
