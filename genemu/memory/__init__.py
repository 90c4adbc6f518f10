"""Addressable memory units and address-space composition."""