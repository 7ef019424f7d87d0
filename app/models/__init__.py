from .studio import Studio
from .customer import Customer
from .session_block import BlockStatus, PaymentMethod, SessionBlock
from .session_transaction import TransactionType, SessionTransaction
