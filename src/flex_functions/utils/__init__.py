"""
Flex Functions Utilities
========================

Shared helper modules for the Flex serverless handlers:

- logger.py          → structured JSON logging
- secrets.py         → AWS Secrets Manager integration
- twilio_client.py   → authenticated Twilio client builder
- events.py          → API Gateway event parsing
- responses.py       → CORS-enabled API Gateway responses
- token_validator.py → Flex token validation

All functions in this package are stateless and suitable for AWS Lambda execution.
"""
