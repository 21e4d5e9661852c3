"""
Dump queue state straight from a sqlite database file.

Usage:
    python tools/queue_check.py [dev.db] [product-id]
Without a product id, prints the most recent products and their active
queue length; with one, prints that product's buyer interests and flags
positions that are not dense and zero-based.
"""
import sqlite3
import sys

DB = sys.argv[1] if len(sys.argv) > 1 else "dev.db"
PRODUCT = sys.argv[2] if len(sys.argv) > 2 else None

conn = sqlite3.connect(DB)
cur = conn.cursor()

if not PRODUCT:
    print("=== Recent Products ===")
    cur.execute(
        """
        SELECT p.id, p.title, p.status, p.created_at,
               (SELECT COUNT(*) FROM buyer_interests b
                 WHERE b.product_id = p.id AND b.status = 'active') AS queue_length
          FROM products p
         ORDER BY p.created_at DESC
         LIMIT 20
        """
    )
    for r in cur.fetchall():
        print(r)
else:
    print(f"=== Buyer interests for product={PRODUCT} ===")
    cur.execute(
        """
        SELECT id, buyer_name, phone, email, status, position, pickup_time, created_at
          FROM buyer_interests
         WHERE product_id = ?
         ORDER BY CASE status WHEN 'active' THEN 0 WHEN 'completed' THEN 1 ELSE 2 END,
                  position IS NULL, position, created_at
        """,
        (PRODUCT,),
    )
    rows = cur.fetchall()
    for r in rows:
        print(r)
    positions = [r[5] for r in rows if r[4] == "active"]
    if positions != list(range(len(positions))):
        print("WARNING: active positions are not dense:", positions)

conn.close()
