SERVICE_NAME = "sns-listener"
