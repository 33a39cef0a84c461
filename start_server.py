#!/usr/bin/env python3
"""
Startup script for Zapp Builder FastAPI server
"""
import uvicorn

if __name__ == "__main__":
    print("🚀 Starting Zapp Builder FastAPI Server")
    print("=" * 50)
    print("📍 Server will be available at: http://localhost:8000")
    print("📚 API Documentation: http://localhost:8000/docs")
    print("🔍 Health Check: http://localhost:8000/api/v1/health")
    print("=" * 50)

    uvicorn.run(
        "Zapp_Builder.main_fastapi:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
