"""Worker process entrypoint for the push-to-s3 queue."""
