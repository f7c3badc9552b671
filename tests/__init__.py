"""cloud-storage-wagon test suite.

Test organization:
- test_repository.py: descriptor parsing, key prefixes, listing collapse
- test_connection.py: lazy binding state machine and concurrency
- test_error_mapping.py: backend exception translation
- test_transport_s3.py: S3 transport against moto
- test_transport_gcs.py / test_transport_gsutil.py: mocked GCS and gsutil
- test_cli.py: wagon-transfer command line
"""
