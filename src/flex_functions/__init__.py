"""
Flex Functions
==============

Serverless handlers backing a Twilio Flex contact center. Each handler is an
independent AWS Lambda function behind API Gateway (see template.yaml).

Modules under this package:
- adjust_chat_capacity.py     → Adjust a worker's chat channel capacity (/adjustChatCapacity)
- conversation_listener.py    → Twilio Conversations webhook (/webhooks/conversations)
- save_contact_to_safernet.py → Signed contact proxy to SaferNet (/saveContactToSaferNet)
- health.py                   → Health check (/healthz)
- helpers/                    → Unsupported media error replies
- transfer/                   → Task transfer control checks
- utils/                      → Shared helper modules (logging, secrets, Twilio client, etc.)

Environment variables expected:
  • AWS_REGION                        - AWS region for Secrets Manager (default: us-east-1)
  • TWILIO_SECRET_NAME                - Secrets Manager secret with Twilio credentials
  • TWILIO_WORKSPACE_SID              - TaskRouter workspace
  • DOMAIN_NAME                       - Host serving translation bundles
  • SAFERNET_ENDPOINT                 - SaferNet contact endpoint
  • SAFERNET_TOKEN                    - Secret used to sign SaferNet payloads
  • SAVE_PENDING_CONTACTS_STATIC_KEY  - API key accepted by saveContactToSaferNet
  • CORS_ALLOW_ORIGIN                 - Access-Control-Allow-Origin value (default: *)
  • LOG_LEVEL                         - Log verbosity (default: INFO)

All handlers in this package are stateless and Lambda-optimized.
"""

__version__ = "1.0.0"
__license__ = "AGPL-3.0-or-later"

__all__ = ["__version__"]
