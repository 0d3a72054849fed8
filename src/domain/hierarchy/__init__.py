"""Channel -> Activity -> Branch -> Register ownership."""
