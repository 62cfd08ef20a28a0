"""
Procurement Modules.

One subpackage per document of the procurement chain.  Each contains:
- Domain models (frozen DTOs and status enums)
- Workflows (transition tables interpreted by the workflow executor)
- ORM rows
- A service facade that owns the transaction of every operation

Modules:
- catalog: vendor components and their approval
- enquiry: buyer requirements sent to a vendor
- quotation: vendor quotations and the counter-quotation negotiation
- loi: letters of intent issued from accepted quotations
- order: purchase orders confirmed from accepted LOIs
- invoice: vendor invoices against confirmed orders
- payment: payment events per order and phase
- reporting: derived ledger and dashboard reads
"""
