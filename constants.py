# Global Constants

class Roles:
    ADMIN = "ADMIN"
    FINANCE = "FINANCE"
    STAFF = "STAFF"


class ReimbursementStatus:
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"


class DirectExpenseStatus:
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"


class ExpenseSourceType:
    REIMBURSEMENT = "REIMBURSEMENT"
    DIRECT_EXPENSE = "DIRECT_EXPENSE"


class FinanceCategories:
    REIMBURSEMENT = "Reimbursement"


class UploadKinds:
    RECEIPT = "receipts"
    INVOICE = "invoices"
    PAYMENT_PROOF = "payment-proofs"
