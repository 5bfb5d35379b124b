"""Internal endpoint adapters for the NFT brand API."""
