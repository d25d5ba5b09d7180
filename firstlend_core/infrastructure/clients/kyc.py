"""KYC and credit score endpoints"""

import os
from typing import BinaryIO, Optional, Union
from firstlend_core.infrastructure.clients.compat import to_credit_score, to_kyc_status
from firstlend_core.infrastructure.clients.gateway import SessionGateway
from firstlend_core.infrastructure.clients.schemas import ApiResponse


class KYCClient:
    """Client for identity verification and credit score reads"""

    def __init__(self, gateway: SessionGateway):
        self.gateway = gateway

    async def get_kyc_status(self) -> ApiResponse:
        """Data is a KYCStatus on success"""
        response = await self.gateway.request("GET", "/kyc/status", requires_auth=True)
        if response.success and isinstance(response.data, dict):
            return response.with_data(to_kyc_status(response.data))
        return response

    async def verify_kyc(self, bvn: str, nin: str) -> ApiResponse:
        """Submit BVN and NIN for verification; data is the raw verification report"""
        return await self.gateway.request("POST", "/kyc/verify", json={"bvn": bvn, "nin": nin}, requires_auth=True)

    async def get_kyc_documents(self) -> ApiResponse:
        return await self.gateway.request("GET", "/kyc/documents", requires_auth=True)

    async def upload_kyc_document(
        self,
        document_type: str,
        file: Union[bytes, BinaryIO],
        bvn: Optional[str] = None,
        nin: Optional[str] = None,
        filename: Optional[str] = None,
        content_type: str = "application/octet-stream",
    ) -> ApiResponse:
        """
        Upload one identity document as multipart form data.

        Args:
            document_type: Backend document category, e.g. "NationalId"
            file: Raw bytes or an open binary file; read once so a retry can resend it
            bvn, nin: Optional identity numbers sent alongside the document
            filename: Defaults to the file object's name, else the document type

        Returns:
            ApiResponse whose data is the stored document record on success
        """
        content = file if isinstance(file, bytes) else file.read()
        if filename is None:
            name = getattr(file, "name", None)
            filename = os.path.basename(name) if isinstance(name, str) and name else document_type

        form = {"DocumentType": document_type}
        if bvn:
            form["Bvn"] = bvn
        if nin:
            form["Nin"] = nin

        return await self.gateway.request(
            "POST",
            "/kyc/documents/upload",
            data=form,
            files={"File": (filename, content, content_type)},
            requires_auth=True,
        )

    async def get_credit_score(self) -> ApiResponse:
        """Data is a CreditScore on success, None if the backend sent no score"""
        response = await self.gateway.request("GET", "/credit-score", requires_auth=True)
        if response.success and isinstance(response.data, dict):
            return response.with_data(to_credit_score(response.data))
        return response
