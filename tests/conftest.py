"""Pytest configuration and shared fixtures."""

import tempfile
from pathlib import Path

import pytest

PAYMENT_HANDLER = """
// File: api/payments.ts

import { VercelRequest, VercelResponse } from '@vercel/node';
import Stripe from 'stripe';
import { connectToDatabase } from '../lib/mongodb';
import { authenticateToken } from '../lib/auth';
import {
  validatePaymentInput,
  findOrder,
  createStripePaymentIntent,
  updateOrderStatus,
  createPaymentRecord,
  PaymentInput,
} from '../services/paymentService';

const stripe = new Stripe(process.env.STRIPE_SECRET_KEY!, {
  apiVersion: '2023-08-16',
});

export default async function handler(req: VercelRequest, res: VercelResponse) {
  if (req.method !== 'POST') {
    return res.status(405).json({ error: 'Method not allowed' });
  }

  try {
    await authenticateToken(req, res, async () => {
      const { db } = await connectToDatabase();
      const paymentInput = req.body as PaymentInput;

      const validationResult = validatePaymentInput(paymentInput);
      if (!validationResult.isValid) {
        return res.status(400).json({ error: validationResult.error });
      }

      const order = await findOrder(db, paymentInput.orderId);
      if (!order) {
        return res.status(404).json({ error: 'Order not found' });
      }

      const paymentIntent = await createStripePaymentIntent(stripe, paymentInput);

      if (paymentIntent.status === 'succeeded') {
        await updateOrderStatus(db, order._id, paymentIntent.id);
        const payment = await createPaymentRecord(db, order._id, paymentInput, paymentIntent.id);
        res.status(200).json({ success: true, payment: payment });
      } else {
        res.status(200).json({ success: false });
      }
    });
  } catch (error) {
    console.error('Payment processing error:', error);
    res.status(500).json({ error: 'An error occurred while processing the payment' });
  }
}
"""

ORDERS_SERVICE = """
export function findOrder(db: Db, id: string): Promise<Order | null> {
  return db.collection('orders').findOne({ _id: toObjectId(id) });
}

function toObjectId(id: string): ObjectId {
  return new ObjectId(id);
}

export const updateOrderStatus = async (db: Db, id: string, intent: string) => {
  await db.collection('orders').updateOne({ _id: toObjectId(id) }, { $set: { intent } });
  audit('order-updated');
};
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def payment_handler_source() -> str:
    """An API handler with an async callback passed to authenticateToken."""
    return PAYMENT_HANDLER


@pytest.fixture
def orders_service_source() -> str:
    """A service module with a mix of declarations and arrow functions."""
    return ORDERS_SERVICE


@pytest.fixture
def sample_project(temp_dir: Path) -> Path:
    """Create a small TypeScript project on disk."""
    (temp_dir / "api").mkdir()
    (temp_dir / "api" / "payments.ts").write_text(PAYMENT_HANDLER, encoding="utf-8")
    (temp_dir / "services").mkdir()
    (temp_dir / "services" / "orders.ts").write_text(ORDERS_SERVICE, encoding="utf-8")
    (temp_dir / "README.md").write_text("# not source\n", encoding="utf-8")

    vendored = temp_dir / "node_modules" / "stripe"
    vendored.mkdir(parents=True)
    (vendored / "index.js").write_text("function stripe() {}\n", encoding="utf-8")
    return temp_dir
