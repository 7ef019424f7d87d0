from .customer import CustomerCreate, CustomerResponse
from .session_block import (
    SessionBlockCreate,
    SessionBlockUpdate,
    SessionBlockResponse,
    SessionBlockList,
    ConsumeSessionsRequest,
    RefundSessionsRequest,
    ConsumptionResult,
    RefundResult,
    DeletedBlockResponse,
    SessionSummary,
    SessionTransactionResponse,
    TransactionStats,
    StudioSessionStats,
    CustomerSessionOverview,
    StudioCustomersSessions,
)
