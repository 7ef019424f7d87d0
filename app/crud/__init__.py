from .session_block import (
    get_session_block,
    get_customer_session_blocks,
    get_blocks_for_update,
    create_session_block,
    delete_session_block,
    apply_status_assignment,
)
from .session_transaction import (
    create_transaction,
    get_customer_transactions,
)
from .customer import (
    get_customer,
    create_customer,
)
