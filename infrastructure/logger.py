from aws_lambda_powertools import Logger

from infrastructure.config import SERVICE_NAME


def get_logger(service_name: str = SERVICE_NAME) -> Logger:
    return Logger(service=service_name)
