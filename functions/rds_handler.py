# /*
#  * Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  * SPDX-License-Identifier: MIT-0
#  *
#  * Permission is hereby granted, free of charge, to any person obtaining a copy of this
#  * software and associated documentation files (the "Software"), to deal in the Software
#  * without restriction, including without limitation the rights to use, copy, modify,
#  * merge, publish, distribute, sublicense, and/or sell copies of the Software, and to
#  * permit persons to whom the Software is furnished to do so.
#  *
#  * THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED,
#  * INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A
#  * PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT
#  * HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
#  * OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE
#  * SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.
#  */

import os
from typing import Any, Dict

import boto3

from services.mysql import MySQLService
from services.visits import VisitLogService
from util.lambda_logger import create_logger
from util.responses import html_response, error_response

# Get the Lambda function name from the environment
lambda_function_name = os.environ.get("AWS_LAMBDA_FUNCTION_NAME", "UnknownFunction")

# Setup logging
logger = create_logger(lambda_function_name)

session = boto3.session.Session()
sm_client = session.client("secretsmanager")

PROXY_ENDPOINT = os.getenv("PROXY_ENDPOINT")
RDS_SECRET_NAME = os.getenv("RDS_SECRET_NAME")
RDS_DATABASE_NAME = os.getenv("DB_NAME", "cdkpatterns")

RECENT_VISITS_LIMIT = 20

db = MySQLService(secret_client=sm_client, db_host=PROXY_ENDPOINT, db_name=RDS_DATABASE_NAME, log=logger)
visits = VisitLogService(log=logger)


def lambda_handler(event: Dict[str, Any], context: Any):
    """AWS Lambda handler behind the API Gateway proxy integration.

    Records the requested path in the database through RDS Proxy and returns
    the most recent visits as an HTML page.

    Args:
        event (Dict[str, Any]): The API Gateway proxy event.
        context (Any): The context in which the function is called.

    Returns:
        Dict: A proxy integration response, 200 with the visit list or 500 on failure.
    """
    logger.debug(f"{event}")
    logger.info("Start")

    path = event.get("path") or "/"
    conn = None
    try:
        if db.db_secret is None:
            db.set_secret(RDS_SECRET_NAME)
        conn = db.connect_to_db()
        visits.ensure_table(conn)
        visits.record_visit(conn, path)
        recent = visits.recent_visits(conn, RECENT_VISITS_LIMIT)
        logger.info(f"Returning {len(recent)} visits")
        return html_response(recent)
    except Exception:
        logger.exception("Failed to query the database through RDS Proxy")
        return error_response("Unable to reach the database, please try again.")
    finally:
        if conn is not None:
            logger.info("Closing connection")
            conn.close()
        logger.info("End")
