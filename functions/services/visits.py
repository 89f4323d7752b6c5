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

CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS rds_proxy (
        id INT AUTO_INCREMENT PRIMARY KEY,
        url VARCHAR(255) NOT NULL,
        creation_time TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""
INSERT_VISIT_SQL = "INSERT INTO rds_proxy (url) VALUES (%s)"
SELECT_VISITS_SQL = "SELECT id, url, creation_time FROM rds_proxy ORDER BY id DESC LIMIT %s"

# Matches the width of the url column
MAX_URL_LENGTH = 255


class VisitLogService:
    """Records the URLs requested through the API in the ``rds_proxy`` table."""

    def __init__(self, log):
        self.logger = log

    def ensure_table(self, conn) -> None:
        with conn.cursor() as cur:
            cur.execute(CREATE_TABLE_SQL)
        conn.commit()

    def record_visit(self, conn, url: str) -> None:
        """Insert one visit, truncating the url to the column width."""
        url = (url or "/")[:MAX_URL_LENGTH]
        self.logger.debug(f"Recording visit to {url}")
        with conn.cursor() as cur:
            cur.execute(INSERT_VISIT_SQL, (url,))
        conn.commit()

    def recent_visits(self, conn, limit: int = 20):
        with conn.cursor() as cur:
            cur.execute(SELECT_VISITS_SQL, (limit,))
            return list(cur.fetchall())
